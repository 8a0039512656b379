"""
k-nearest-neighbors classification of a bundled tabular dataset
"""
