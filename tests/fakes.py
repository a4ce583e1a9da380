class FakeHost:
    def __init__(self, machine="arm64", tools=(), rosetta=True, brew=None, cpus=8):
        self._machine = machine
        self.tools = set(tools)
        self.rosetta = rosetta
        self.brew = brew
        self.cpus = cpus

    def machine(self):
        return self._machine

    def cpu_count(self):
        return self.cpus

    def which(self, name, path=None):
        return f"/usr/bin/{name}" if name in self.tools else None

    def can_run_x86_64(self):
        return self.rosetta

    def brew_prefix(self, path=None):
        return self.brew


class FakeProbe:
    def __init__(self, present=()):
        self.present = set(present)
        self.queries = []

    def exists(self, library_id, env=None):
        self.queries.append(library_id)
        return library_id in self.present
