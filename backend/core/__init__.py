"""Core indicator and signal logic.

This package contains pure business logic with no I/O dependencies
(no Redis, no HTTP, no message bus). Everything that talks to the
outside world lives in app/ and is injected into the engine through
the protocols in core.protocols.
"""
