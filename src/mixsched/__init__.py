"""
mixsched: admission webhook that spreads workloads across spot and
on-demand Kubernetes nodes.
"""

__version__ = "0.3.0"
