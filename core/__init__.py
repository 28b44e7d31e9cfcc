# Core package - foundational components
#
# Modules:
# - config: Application settings
# - logging: Structured logging
# - errors: Dispatch error taxonomy
# - drivers: Pluggable dispatch drivers and their registry
