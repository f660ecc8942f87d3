"""Leave: working-day calculation, requests, approvals, holidays and accrual."""
