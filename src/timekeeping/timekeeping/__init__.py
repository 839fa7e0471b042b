"""Timekeeping reconciliation package.

Feature modules (attendance, tardiness, leave, overtime, payroll) each keep a
domain model, a repository protocol with a MySQL implementation, a service
holding the business rules and a thin Flask controller.
"""
