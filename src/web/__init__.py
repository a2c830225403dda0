"""HTTP interface to the election ledger."""
