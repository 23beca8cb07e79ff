"""
Storage of sample directories in the CSV line format.
"""

from .sample_store import create_sample_directory, load_sample_sets, save_samples

__all__ = ["load_sample_sets", "create_sample_directory", "save_samples"]
