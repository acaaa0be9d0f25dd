"""Pipeline core: domain types, ports, retry policy and use cases."""
