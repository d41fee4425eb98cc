"""Simulated interview practice: session engine, prompts and reports."""
