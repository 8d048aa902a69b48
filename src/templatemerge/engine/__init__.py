"""Scanner, parser, analyzer, planner and mutator for C#-style sources."""
