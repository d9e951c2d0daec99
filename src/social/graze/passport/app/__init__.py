"""
Passport Service Application Layer

Wires the passport store and the proxy header middleware into an aiohttp
application.

Key Components:
- cli.py: Entry point and logging configuration
- config.py: Configuration management using Pydantic settings
- server.py: Application factory, middleware and resource lifecycle
- proxy.py: X-Forwarded-* header normalization
- handlers/: Liveness and readiness probes

Middleware, outermost first:
- Statsd middleware for request metrics
- Sentry middleware for error reporting
- Proxy header middleware recording this hop in X-Forwarded-For/Host

The application routes only the internal probes (/internal/alive,
/internal/ready). Application endpoints belong to the service embedding it.
"""
