"""
Kubetask Test Suite

Unit tests for the resource model, selectors, asserts and builders, plus
tests for the task executor, run orchestrator, host adapter and CLI.
"""
