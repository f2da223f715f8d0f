"""Routing — compiled controller route table, resolver, and parameter binder.

Controller metadata is compiled into an immutable ``RouteTable`` when
the app freezes. Each request is resolved against it in two phases:
controller by longest base path, then route by longest sub-path.
"""
