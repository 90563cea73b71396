"""Lifecycle services sitting between the routers and the accounting engines."""
