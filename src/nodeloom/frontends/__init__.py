"""Frontends - user interfaces over the nodeloom engine."""
