"""
Default usage rendering: the typed labels followed by the grammar of the resolved command.

    >>> # after "game give" failed inside the "give" subcommand
    >>> DefaultUsageBuilder().get_usage(context)
    'game give <item> [amount]'
"""


class DefaultUsageBuilder:

    def get_usage(self, context):
        command = context.command
        if command is None:
            return ""
        return " ".join(filter(None, (*context.labels, command.part.line_representation())))

    def __call__(self, context):
        return self.get_usage(context)


__all__ = ("DefaultUsageBuilder",)
