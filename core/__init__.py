"""Core domain: state, rules, lifecycle (UI/LLM independent)."""

API_VERSION = "core-v1-20261019"
