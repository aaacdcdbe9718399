"""AI routing, scoping, CRM scoring and contractor matching for the FTW marketplace."""
