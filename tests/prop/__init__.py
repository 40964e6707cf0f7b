"""
Property-based tests for the Dalvik decoder and block lifter.

This package hosts Hypothesis strategies and the test entrypoints for both
the fast CI lane and the nightly fuzz job.
"""
