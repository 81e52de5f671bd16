"""Performance benchmarks for ganesh.

This package contains microbenchmarks for the solvers, covering the
Nelder-Mead and L-BFGS-B minimizers and the ensemble samplers.
"""
