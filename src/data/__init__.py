"""DuckDB storage for the election ledger."""
