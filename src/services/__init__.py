"""Business logic services used by handlers.

Services are imported lazily by handlers so cold starts that only hit
/health never build boto3 resources.
"""

# Do NOT import services here - use lazy loading in handlers instead
