"""Chart-option theming pipeline.

Widgets hand the external renderer a chart-option document. Immediately
before rendering, that document is rewritten here: theme-driven styling for
ordinary widgets, explicit style configuration for styled embeds, and per
series color overrides as the final layer. Everything in this package is pure.
"""
