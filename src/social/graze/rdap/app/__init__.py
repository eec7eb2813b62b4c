"""
RDAP Bootstrap Application Layer

This package runs the resolver as a small internal HTTP service using the aiohttp
framework, with a background task that keeps the bootstrap registries cached.

Key Components:
- cli.py: Entry point and logging setup
- server.py: Web server configuration, middleware and resource lifecycle
- config.py: Configuration management using Pydantic settings
- handlers/: Request handlers for the internal endpoints
- tasks.py: Background registry refresh
- metrics.py: Metrics abstraction (Telegraf/StatsD or no-op)

The application uses two middleware layers:
- Statsd middleware for request metrics
- Sentry middleware for error reporting

It provides the following endpoints:
- Liveness and readiness endpoints (/internal/alive, /internal/ready)
- Identifier resolution (/internal/api/resolve)
- Forced registry revalidation (/internal/api/refresh)
"""
