"""
Monitoring event intake.

Turns arbitrarily shaped monitoring webhooks (Sentry issue alerts) into a
canonical NormalizedEvent and derives the grouping key that identifies
"the same underlying problem" across repeated deliveries.
"""
