"""Key-value namespace handles.

A namespace is the minimal get/put-with-TTL surface an edge KV store offers.
The in-memory handle serves development and tests; the Redis handle serves
deployments that run outside the edge platform.
"""
