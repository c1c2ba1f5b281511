"""Argo Server connectivity: settings, REST client and event stream."""
