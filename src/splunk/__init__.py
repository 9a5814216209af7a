"""Splunk REST access — paginated queries for tracked and fired alerts."""
