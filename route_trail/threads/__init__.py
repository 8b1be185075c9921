"""route_trail.threads: worker thread entry points (location sampler)."""

from route_trail.threads.sampler import run_sampler_loop

__all__ = [
    "run_sampler_loop",
]
