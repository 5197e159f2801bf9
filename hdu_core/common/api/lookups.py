# Router lookup patterns. Keeps detail routes from swallowing list-level
# paths such as ``analytics/`` or ``critical-patients/``.
UUID_LOOKUP = r"[0-9a-fA-F]{8}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{12}"
INT_LOOKUP = r"\d+"
