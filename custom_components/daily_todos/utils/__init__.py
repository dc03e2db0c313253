"""Pure utility modules for Daily Todos (no Home Assistant imports)."""
