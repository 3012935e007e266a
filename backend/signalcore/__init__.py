"""Core signal logic: indicators, decision rules, trading calendar and models.

This package contains pure business logic with no I/O dependencies
(no network, no web framework). It is used by the live signal desk
service (signaldesk/) and can be driven directly from tests or scripts.
"""
