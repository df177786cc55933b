"""Operating-system simulator with scheduling, paged virtual memory and a TLB cache."""

__version__ = "0.1.0"