"""Files shipped into every assembled artifact."""
