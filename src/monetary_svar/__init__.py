"""
Monetary Policy Transmission SVAR
=================================
Quarterly macro data, CPI reconstruction from manually supplied inflation,
and a recursive (Cholesky) structural VAR in the tradition of Sims (1980).

Methods:
- Augmented Dickey-Fuller and KPSS unit-root tests
- Information-criteria lag selection (AIC, FPE)
- Recursive SVAR impulse responses and variance decompositions
"""

__version__ = "0.1.0"
