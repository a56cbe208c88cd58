"""DuckDB persistence for the market index."""
