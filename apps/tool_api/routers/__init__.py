"""Tool API routers."""
