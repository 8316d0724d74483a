"""GitHub Action surface: report outputs, PR comments and baseline reconciliation."""
