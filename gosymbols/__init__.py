"""Cross-package Go symbol resolution and struct code generation."""
