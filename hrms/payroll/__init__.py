"""Payroll: monthly salary runs, GOSI and payslips."""
