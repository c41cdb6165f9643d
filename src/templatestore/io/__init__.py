"""Import/export helpers for template data."""

# Submodules expose the concrete functions. Import them directly, e.g.
# ``from templatestore.io.substitutions import read_substitutions_csv``. This
# package avoids implicit re-exports so that importing the store never pulls
# in pandas.
