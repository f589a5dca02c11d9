"""Controller data models: options, apply bookkeeping and pipeline state."""
