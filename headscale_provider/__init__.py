"""Adapter between a Terraform-style provider and the Headscale REST API."""
