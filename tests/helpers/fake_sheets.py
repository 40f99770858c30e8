import threading


ACME_GRID = [
    ["Company name", "Market cap", "Revenue growth Percentage (YoY)", "Debt Reduced Or Not"],
    ["Acme", "1.2B", "15%", "Reduced"],
    ["Globex", "$500M", "-3.5%", "Unchanged"],
]

FULL_GRID = [
    [
        "Company name",
        "Symbol",
        "Market cap",
        "Revenue growth Percentage (YoY)",
        "Profit Growth Percentage (YoY)",
        "Margin Expansion",
        "Which Sector this Company",
        "Main Revenue Stream",
        "Debt Reduced Or Not",
    ],
    ["Acme", "ACME", "1.2B", "15%", "20%", "5", "Industrials", "Anvils", "Reduced"],
    ["Globex", "GLBX", "$500M", "-3.5%", "2%", "5", "Tech", "Software", "Unchanged"],
    ["Initech", "INIT", "2.5T", "8%", "n/a", "3%", "Tech", "Consulting", ""],
    ["Umbrella", "UMB", "$2,500", "", "-1%", "7.5%", "", "", "Partially"],
]


class FakeFetcher:
    """Returns queued grids (or raises queued exceptions) in order."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = []
        self.called = threading.Event()

    def __call__(self, settings):
        self.calls.append(settings)
        self.called.set()
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text="", json_error=False):
        self.status_code = status_code
        self._payload = payload
        self.text = text
        self.reason = "Error" if status_code >= 400 else "OK"
        self._json_error = json_error

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._json_error:
            raise ValueError("no json")
        return self._payload
