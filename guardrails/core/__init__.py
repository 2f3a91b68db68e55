"""Core types shared across the domain, infra and orchestration layers."""
