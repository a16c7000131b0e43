"""Optional integrations with concrete durable-execution runtimes."""
