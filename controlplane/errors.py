class AgentRunError(Exception):
    """Any failure that ends an agent run without usable output."""


class UnknownAgent(AgentRunError):
    def __init__(self, agent_id: str):
        super().__init__(f"Unknown agent: {agent_id}")
        self.agent_id = agent_id


class TransportError(AgentRunError):
    """The execution unit was unreachable or answered with a non-2xx status."""


class SubmissionFailed(TransportError):
    pass


class SpawnFailure(AgentRunError):
    """The execution unit reported an error instead of a process outcome."""


class ProcessFailure(AgentRunError):
    def __init__(self, exit_code, output: str):
        super().__init__(f"Task failed with exit code {exit_code}: {output}")
        self.exit_code = exit_code
        self.output = output


class TaskTimeoutError(AgentRunError, TimeoutError):
    pass
