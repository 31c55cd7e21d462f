"""HTTP layer: validation gate, routes, envelopes and error handlers."""
