"""Console HTTP API: blueprints, decorators and error handlers."""
