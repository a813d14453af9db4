"""Numeric tolerances shared by the tableau engine and the tree drivers."""

# Pivot-element and dual/primal feasibility checks on tableau entries.
PIVOT_TOL = 1e-10

# Primal ratio test: entering reduced cost and eligible pivot-column entries.
RATIO_TOL = 1e-9

# Distance to the nearest integer under which a value counts as integral.
INTEGRALITY_TOL = 1e-5

# Constraint satisfaction checks on extracted solutions.
FEASIBILITY_TOL = 1e-6

# Fractional parts below this are dropped from Gomory cut rows.
CUT_COEF_TOL = 1e-9

# Added before flooring so that 2.9999999999 floors to 3.
FLOOR_GUARD = 1e-10

# Cut terms smaller than this are hidden from trace text.
DISPLAY_TOL = 1e-4
