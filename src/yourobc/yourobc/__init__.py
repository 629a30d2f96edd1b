"""YourOBC business dashboard package.

This package is organized by feature modules (invoices, employees, kpis, ...)
with a thin Flask JSON controller layer and service/repository layers.
"""
