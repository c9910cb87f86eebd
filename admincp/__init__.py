"""Admin console storage core: typed user/group DAOs over a pluggable SQL store."""
