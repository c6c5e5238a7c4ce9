"""
PteroGate Gateway — sessions, dispatch and transport adapters.

Submodules:
- connector    : ShellConnector interface and the paramiko implementation
- session      : RemoteSession (shell, buffer, idle timer, audit log)
- registry     : SessionRegistry (host → session, identity → current host)
- confirmation : Two-step connect gate
- panic        : Emergency lockout
- streaming    : Output chunking and the periodic streamer
- messenger    : Outbox and the console / webhook messengers
- commands     : Command handlers and GatewayContext
- dispatcher   : Parse → guard → handler
- server       : Flask webhook endpoint
- orchestrator : Wiring and the CLI entry point

Import from submodules directly, e.g.:
    from pterogate.gateway.orchestrator import Gateway
"""
