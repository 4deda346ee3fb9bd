"""Chainable HTTP requests with middleware, retries, rate limiting and response parsing."""