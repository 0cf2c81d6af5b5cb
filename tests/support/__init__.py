"""Shared test doubles and Spotify payload builders."""
