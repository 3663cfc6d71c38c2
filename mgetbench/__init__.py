"""
Multithreaded Redis MGET latency tester.

Provisions a pool of test keys, drives timed batched reads from a fixed pool
of worker threads and reports either median latencies across a concurrency
sweep or raw per-request samples for scatter plots.
"""
