"""Multi-tenant Web Push relay: device registry, subscription index and delivery engine."""
