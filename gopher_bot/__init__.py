"""Gophers Slack bot (Slack Socket Mode client).

Modules:
- settings: configuration loading
- markup: Slack markup cleanup, directedness
- router: Message / Responder / Handler and the combinators
- commands: the rule catalog
- handlers/*: rule implementations
- dispatcher: event filtering and dispatch
- slack: Slack Web API client and responders
- store: changesets already relayed
- pollers/*: Gerrit and Go Time background jobs
- server: Socket Mode listener, health endpoint, startup
"""
