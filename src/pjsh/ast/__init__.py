"""AST definitions for pjsh."""
