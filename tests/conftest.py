"""Shared test fixtures for gosymbols."""

from __future__ import annotations

from pathlib import Path

import pytest

from gosymbols.discovery import SearchRoot
from gosymbols.project import Project

HELLO_GO = """\
package main

import "bytes"

type Hello struct {
	A      int
	B      *string
	C      []*float64
	Buffer *bytes.Buffer `json:"xxx"`
}
"""


def write_go(directory: Path, name: str, code: str) -> Path:
    """Write a Go file, creating its directory."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(code, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def goroot(tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point GOROOT and GOPATH at private directories.

    GOROOT/src holds a tiny ``bytes`` package so that tests never reach the
    real standard library.
    """
    env = tmp_path_factory.mktemp("goenv")
    root = env / "goroot"
    write_go(
        root / "src" / "bytes",
        "buffer.go",
        "package bytes\n\n// Buffer is a variable-sized buffer of bytes.\ntype Buffer struct {\n\tbuf []byte\n}\n",
    )
    monkeypatch.setenv("GOROOT", str(root))
    monkeypatch.setenv("GOPATH", str(env / "gopath"))
    return root


@pytest.fixture()
def sample_module(tmp_path: Path) -> Path:
    """A Go module ``example.com/app`` with a main package and two libraries."""
    app = tmp_path / "app"
    write_go(app, "go.mod", "module example.com/app\n\ngo 1.21\n")
    write_go(app, "hello.go", HELLO_GO)
    write_go(
        app,
        "mapping.go",
        """\
package main

import (
	"example.com/app/models"
	u "example.com/app/util"
)

type A struct {
	Request string
}

type UserA struct {
	UserID  int64
	Request string
}

type Account struct {
	// Owner of the account.
	// required
	Owner   *models.User `json:"owner" db:"owner_id"`
	Tags    []string     // required
	Balance u.Money
	Note    string // optional
}

func main() {}

func (a *Account) Close() error { return nil }
""",
    )
    write_go(
        app / "models",
        "user.go",
        """\
package models

import "bytes"

const DefaultName = "anonymous"

var Registry = map[string]*User{}

type User struct {
	Name string
	Bio  *bytes.Buffer
}

type Store interface {
	Get(id int64) (*User, error)
	Put(u *User) error
}

func NewUser(name string) *User { return &User{Name: name} }
""",
    )
    write_go(
        app / "util",
        "money.go",
        """\
package util

type Money struct {
	Cents int64
}
""",
    )
    return app


@pytest.fixture()
def project(sample_module: Path) -> Project:
    """The sample module opened by directory with unlimited scanning."""
    return Project.by_dir(sample_module)


@pytest.fixture()
def module_roots(sample_module: Path, goroot: Path) -> list[SearchRoot]:
    """Explicit search roots for the sample module."""
    return [
        SearchRoot(directory=sample_module, prefix="example.com/app"),
        SearchRoot(directory=goroot / "src"),
    ]
