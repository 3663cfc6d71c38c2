"""
Measurement engine for the MGET latency benchmark.

This package holds the job queue and worker pool that issue timed batched
reads, the collectors that reduce or stream the resulting samples, the two
sweep drivers, and the text and chart output they feed.
"""
