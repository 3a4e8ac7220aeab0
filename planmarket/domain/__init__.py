"""Domain layer for PlanMarket.

Search filters, price composition, verification codes and password rules.
It is intentionally framework-agnostic: domain logic should be testable without Flask.
"""
