"""Domain-level policies and business rules.

This package contains logic that defines *what* the business rules are
(tax resolution, opening hours, tenant settings), independent from *where*
they are applied (services, repositories, routers). Nothing here touches
the database.
"""
