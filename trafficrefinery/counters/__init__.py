"""Per-flow counters and the registry that creates them by name."""