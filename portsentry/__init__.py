#!/usr/bin/env python3
import sys
import os
import re
import time
import argparse
import json
import signal
import queue
import threading
import subprocess
from collections import Counter, namedtuple
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from enum import Enum
from shutil import which

import psutil
import yaml

CONFIG_DIR = os.path.expanduser("~/.config/portsentry")
CONFIG_PATH = os.path.join(CONFIG_DIR, "config.yaml")
DEBUG_LOG_PATH = os.path.join(CONFIG_DIR, "debug.log")

DEFAULT_CONFIG = {
    "lsof_path": "lsof",
    "debug_log": True,
    "default_category": None,
    "default_search": "",
}
CONFIG = dict(DEFAULT_CONFIG)

SCAN_INTERVAL = 5.0      # seconds between periodic scans
GRACE_PERIOD = 0.5       # seconds between SIGTERM and SIGKILL
KILL_RESULT_TTL = 2.5    # seconds a kill banner stays on screen

LSOF_FALLBACK_PATH = "/usr/sbin/lsof"
LSOF_ARGS = ["-iTCP", "-sTCP:LISTEN", "-n", "-P"]
# COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME (LISTEN)
MIN_LSOF_FIELDS = 10


def debug_log(msg):
    """Write a timestamped message to the debug log."""
    if not CONFIG.get("debug_log", True):
        return
    try:
        os.makedirs(os.path.dirname(DEBUG_LOG_PATH), exist_ok=True)
        with open(DEBUG_LOG_PATH, "a") as f:
            f.write(f"[{time.strftime('%Y-%m-%d %H:%M:%S')}] {msg}\n")
    except OSError:
        pass

# --------------------------------------------------
# Config
# --------------------------------------------------
def init_config(path=None):
    """Merge the YAML config file over the defaults, creating it on first run."""
    path = path or CONFIG_PATH
    if os.path.exists(path):
        try:
            with open(path, "r") as f:
                saved = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            debug_log(f"CONFIG: Error loading {path}: {e}")
            return CONFIG
        if isinstance(saved, dict):
            CONFIG.update(saved)
        else:
            debug_log(f"CONFIG: {path} is not a mapping, using defaults")
    else:
        save_config(path)
    return CONFIG

def save_config(path=None):
    path = path or CONFIG_PATH
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(CONFIG, f, default_flow_style=False)
    except OSError as e:
        debug_log(f"CONFIG: Error saving: {e}")

# --------------------------------------------------
# Categories
# --------------------------------------------------
class Category(Enum):
    """Usage category of a listening port. Declaration order is the display order."""
    WEB_DEV = "Web Dev"
    BACKEND = "Backend"
    DATABASE = "Database"
    SYSTEM = "System"
    OTHER = "Other"

    @property
    def label(self):
        return self.value

# (category, single ports, inclusive ranges) checked top to bottom
CATEGORY_RULES = [
    (Category.DATABASE,
     frozenset({2379, 3306, 5432, 5433, 6379, 6380, 9200, 9300, 11211, 27017, 27018}),
     ()),
    (Category.WEB_DEV,
     frozenset({80, 443, 4200, 5173, 5174, 5500}),
     ((3000, 3999), (8080, 8089))),
    (Category.BACKEND,
     frozenset(),
     ((4000, 4999), (5000, 5100), (8000, 8079), (8090, 8999), (9000, 9999))),
    (Category.SYSTEM,
     frozenset(),
     ((0, 1023),)),
]

def categorize(port):
    if not 0 <= port <= 65535:
        raise ValueError(f"port out of range: {port}")
    for category, ports, ranges in CATEGORY_RULES:
        if port in ports:
            return category
        for low, high in ranges:
            if low <= port <= high:
                return category
    return Category.OTHER

def _normalize_category_name(text):
    return re.sub(r"[\s_-]+", "", text).lower()

def parse_category(text):
    """Resolve 'webdev', 'Web Dev', 'web-dev', 'DATABASE'... to a Category; 'all' or '' means no filter."""
    if text is None:
        return None
    wanted = _normalize_category_name(str(text))
    if wanted in ("", "all"):
        return None
    for category in Category:
        if wanted in (_normalize_category_name(category.name), _normalize_category_name(category.value)):
            return category
    raise ValueError(f"unknown category: {text!r}")

# --------------------------------------------------
# Data model
# --------------------------------------------------
class ListeningEntry(namedtuple("ListeningEntry", "port pid process_name user address")):
    """One listening TCP socket and the process that owns it."""
    __slots__ = ()

    @property
    def key(self):
        return (self.pid, self.port)

    @property
    def category(self):
        return categorize(self.port)

    def to_dict(self):
        return {
            "port": self.port,
            "pid": self.pid,
            "process": self.process_name,
            "user": self.user,
            "address": self.address,
            "category": self.category.label,
        }

# entries is a tuple; error is None unless the scan itself failed
Snapshot = namedtuple("Snapshot", "entries scanned_at error")
EMPTY_SNAPSHOT = Snapshot((), None, None)

def display_address(address):
    return "all interfaces" if address == "*" else address

# --------------------------------------------------
# Address parsing
# --------------------------------------------------
class AddressParseError(ValueError):
    """Raised when an lsof NAME field is not a host:port endpoint."""

_PORT_RE = re.compile(r"[0-9]{1,5}")

def _parse_port(text, name):
    if not _PORT_RE.fullmatch(text):
        raise AddressParseError(f"bad port in {name!r}")
    port = int(text)
    if port > 65535:
        raise AddressParseError(f"port out of range in {name!r}")
    return port

def parse_address(name):
    """
    Split '127.0.0.1:3000', '*:8080' or '[::1]:5432' into (host, port).
    Raises AddressParseError for anything else.
    """
    if name.startswith("["):
        close = name.find("]")
        if close < 0:
            raise AddressParseError(f"missing ']' in {name!r}")
        rest = name[close + 1:]
        if not rest.startswith(":"):
            raise AddressParseError(f"missing port separator in {name!r}")
        return name[1:close], _parse_port(rest[1:], name)

    host, sep, port_text = name.rpartition(":")
    if not sep:
        raise AddressParseError(f"no port in {name!r}")
    return host, _parse_port(port_text, name)

# --------------------------------------------------
# lsof listing
# --------------------------------------------------
def find_lsof():
    configured = CONFIG.get("lsof_path") or "lsof"
    found = which(configured)
    if found:
        return found
    if os.path.exists(LSOF_FALLBACK_PATH):
        return LSOF_FALLBACK_PATH
    return None

def parse_lsof_output(output):
    """
    Parse `lsof -iTCP -sTCP:LISTEN -n -P` text.

    Returns (entries, skipped). The first line is the header. Malformed lines
    are skipped and counted; the first entry seen for a (pid, port) wins.
    """
    entries = {}
    skipped = 0
    for line in output.splitlines()[1:]:
        if not line.strip():
            continue
        parts = line.split()
        if len(parts) < MIN_LSOF_FIELDS:
            skipped += 1
            continue
        try:
            pid = int(parts[1])
        except ValueError:
            skipped += 1
            continue
        if pid <= 0:
            skipped += 1
            continue
        # parts[-1] is the "(LISTEN)" marker
        try:
            address, port = parse_address(parts[-2])
        except AddressParseError:
            skipped += 1
            continue
        entry = ListeningEntry(port, pid, parts[0], parts[2], address)
        if entry.key not in entries:
            entries[entry.key] = entry
    return list(entries.values()), skipped

class ListingProvider:
    """
    Runs lsof and turns its listing into ListeningEntry objects.

    There is no timeout on lsof: a hung lsof keeps its scan in flight until
    it exits.
    """

    def __init__(self, executable=None):
        self.executable = executable
        self.last_error = None

    def command(self):
        return [self.executable or find_lsof() or "lsof"] + LSOF_ARGS

    def collect(self):
        """Return (entries, error). error is None unless lsof could not be run or read."""
        cmd = self.command()
        try:
            proc = subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.DEVNULL)
        except OSError as e:
            error = f"could not run {cmd[0]}: {e.strerror or e}"
            debug_log(f"SCAN: {error}")
            return [], error

        # communicate() reads stdout to EOF before waiting on the child
        raw, _ = proc.communicate()
        if proc.returncode:
            # lsof also exits 1 when nothing is listening
            debug_log(f"SCAN: {cmd[0]} exited with status {proc.returncode}")

        try:
            output = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            error = f"unreadable lsof output: {e}"
            debug_log(f"SCAN: {error}")
            return [], error
        if not output:
            return [], None

        entries, skipped = parse_lsof_output(output)
        debug_log(f"SCAN: {len(entries)} listening entries, {skipped} lines skipped")
        return entries, None

    def scan(self):
        entries, self.last_error = self.collect()
        return entries

def scan_listening_ports():
    return ListingProvider().scan()

# --------------------------------------------------
# Filtering / sorting
# --------------------------------------------------
def matches_search(entry, search_text):
    q = search_text.lower()
    return (q in entry.process_name.lower()
            or q in str(entry.port)
            or q in str(entry.pid))

def filter_entries(entries, category=None, search_text=""):
    """Apply the category and text filters, then sort by port (stable for ties)."""
    result = list(entries)
    if category is not None:
        result = [e for e in result if e.category is category]
    if search_text:
        result = [e for e in result if matches_search(e, search_text)]
    return sorted(result, key=lambda e: e.port)

def category_counts(entries):
    """[(Category, count), ...] in display order, empty categories left out."""
    counts = Counter(e.category for e in entries)
    return [(category, counts[category]) for category in Category if counts[category]]

# --------------------------------------------------
# Process termination
# --------------------------------------------------
class OutcomeKind(Enum):
    SUCCESS = "success"
    FAILED = "failed"
    ALREADY_TERMINATED = "already_terminated"

class TerminationOutcome(namedtuple("TerminationOutcome", "kind reason")):
    __slots__ = ()

    @classmethod
    def success(cls):
        return cls(OutcomeKind.SUCCESS, None)

    @classmethod
    def failed(cls, reason):
        return cls(OutcomeKind.FAILED, reason)

    @classmethod
    def already_terminated(cls):
        return cls(OutcomeKind.ALREADY_TERMINATED, None)

class KillState(Enum):
    IDLE = "idle"
    SIGNAL_SENT = "signal_sent"
    GRACE_PERIOD = "grace_period"
    RESOLVED = "resolved"

class KillRequest:
    """State of one kill attempt. It is resolved exactly once."""

    def __init__(self, pid):
        self.pid = pid
        self.state = KillState.IDLE
        self.outcome = None

    def resolve(self, outcome):
        if self.state is KillState.RESOLVED:
            raise RuntimeError(f"kill request for pid {self.pid} already resolved")
        self.state = KillState.RESOLVED
        self.outcome = outcome
        return outcome

    def __repr__(self):
        return f"<KillRequest pid={self.pid} state={self.state.value} outcome={self.outcome}>"

def _signal_error(sig_name, err):
    return f"{sig_name} failed: {err.strerror or err}"

class ProcessTerminator:
    """
    SIGTERM, wait GRACE_PERIOD, then SIGKILL if the process is still there.

    begin() sends SIGTERM and returns quickly; finish() does the blocking
    grace wait and belongs on a worker thread.
    """

    def __init__(self, send_signal=os.kill, pid_exists=psutil.pid_exists,
                 sleep=time.sleep, grace_period=GRACE_PERIOD):
        self._send_signal = send_signal
        self._pid_exists = pid_exists
        self._sleep = sleep
        self.grace_period = grace_period

    def begin(self, pid):
        request = KillRequest(pid)
        if pid <= 0:
            # kill(0) / kill(-n) would signal whole process groups
            request.resolve(TerminationOutcome.failed(f"invalid pid {pid}"))
            return request

        request.state = KillState.SIGNAL_SENT
        try:
            self._send_signal(pid, signal.SIGTERM)
        except ProcessLookupError:
            debug_log(f"KILL: pid {pid} already gone before SIGTERM")
            request.resolve(TerminationOutcome.already_terminated())
        except OSError as e:
            debug_log(f"KILL: SIGTERM to {pid} failed: {e}")
            request.resolve(TerminationOutcome.failed(_signal_error("SIGTERM", e)))
        else:
            debug_log(f"KILL: SIGTERM sent to {pid}")
            request.state = KillState.GRACE_PERIOD
        return request

    def finish(self, request):
        if request.state is KillState.RESOLVED:
            return request.outcome

        self._sleep(self.grace_period)
        if not self._pid_exists(request.pid):
            debug_log(f"KILL: pid {request.pid} exited within grace period")
            return request.resolve(TerminationOutcome.success())

        try:
            self._send_signal(request.pid, signal.SIGKILL)
        except OSError as e:
            debug_log(f"KILL: SIGKILL to {request.pid} failed: {e}")
            return request.resolve(TerminationOutcome.failed(_signal_error("SIGKILL", e)))
        debug_log(f"KILL: SIGKILL sent to {request.pid}")
        return request.resolve(TerminationOutcome.success())

    def terminate(self, pid):
        """Run both phases on the calling thread."""
        return self.finish(self.begin(pid))

def describe_outcome(entry, outcome):
    if outcome.kind is OutcomeKind.SUCCESS:
        return f"Killed {entry.process_name} on port {entry.port}"
    if outcome.kind is OutcomeKind.ALREADY_TERMINATED:
        return f"{entry.process_name} already stopped"
    return f"Failed: {outcome.reason}"

def kill_prompt(entry):
    return (f"Terminate {entry.process_name} (PID {entry.pid}) on port {entry.port}?\n"
            f"Sends SIGTERM first, then SIGKILL after {int(GRACE_PERIOD * 1000)}ms if still running.")

# ═══════════════════════════════════════════════════════════════
# 📡 STORE: single owner of snapshot, filters and kill results
# ═══════════════════════════════════════════════════════════════
KillResult = namedtuple("KillResult", "entry outcome resolved_at")

class PortStore:
    """
    Commands (request_scan, request_kill, set_filter) may be submitted from any
    thread. They, and the results of background scans and grace periods, are
    applied only by process_pending() on the thread that owns the store.
    """

    def __init__(self, provider=None, terminator=None, max_workers=4):
        self.provider = provider or ListingProvider()
        self.terminator = terminator or ProcessTerminator()
        self.snapshot = EMPTY_SNAPSHOT
        self.category = None
        self.search_text = ""
        self.kill_result = None
        self._scans_in_flight = 0
        self._kills_in_flight = 0
        self._inbox = queue.Queue()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="portsentry-scan")
        # grace periods never wait behind a hung lsof
        self._kill_executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="portsentry-kill")

    @property
    def is_scanning(self):
        return self._scans_in_flight > 0

    @property
    def is_busy(self):
        return self._scans_in_flight > 0 or self._kills_in_flight > 0

    # commands
    def request_scan(self):
        self._inbox.put(("scan",))

    def request_kill(self, entry):
        self._inbox.put(("kill", entry))

    def set_filter(self, category=None, search_text=""):
        self._inbox.put(("filter", category, search_text or ""))

    def process_pending(self, timeout=0):
        """
        Apply queued messages. Waits up to `timeout` seconds for the first one
        (None waits forever, 0 never waits). Returns how many were applied.
        """
        applied = 0
        block = timeout is None or timeout > 0
        while True:
            try:
                if applied == 0 and block:
                    msg = self._inbox.get(timeout=timeout)
                else:
                    msg = self._inbox.get_nowait()
            except queue.Empty:
                return applied
            self._apply(msg)
            applied += 1

    def wait_idle(self, timeout=None):
        """Pump messages until no scan or kill is in flight. False on timeout."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while self.is_busy or not self._inbox.empty():
            if deadline is not None and time.monotonic() >= deadline:
                return False
            self.process_pending(timeout=0.05)
        return True

    def _apply(self, msg):
        kind = msg[0]
        if kind == "scan":
            self._start_scan()
        elif kind == "scan_done":
            self._scans_in_flight -= 1
            self.snapshot = msg[1]
        elif kind == "filter":
            self.category, self.search_text = msg[1], msg[2]
        elif kind == "kill":
            self._start_kill(msg[1])
        elif kind == "kill_done":
            self._kills_in_flight -= 1
            entry, outcome = msg[1], msg[2]
            self.kill_result = KillResult(entry, outcome, time.monotonic())
            self._start_scan()
        else:
            raise ValueError(f"unknown store message {kind!r}")

    def _start_scan(self):
        self._scans_in_flight += 1
        self._executor.submit(self._scan_worker)

    def _scan_worker(self):
        try:
            entries, error = self.provider.collect()
        except Exception as e:
            # scan_done must still be posted or is_scanning never clears
            debug_log(f"SCAN: provider raised: {e}")
            entries, error = [], str(e)
        self._inbox.put(("scan_done", Snapshot(tuple(entries), datetime.now(), error)))

    def _start_kill(self, entry):
        self._kills_in_flight += 1
        request = self.terminator.begin(entry.pid)
        if request.state is KillState.RESOLVED:
            self._inbox.put(("kill_done", entry, request.outcome))
        else:
            self._kill_executor.submit(self._grace_worker, entry, request)

    def _grace_worker(self, entry, request):
        try:
            outcome = self.terminator.finish(request)
        except Exception as e:
            debug_log(f"KILL: grace period for {entry.pid} raised: {e}")
            outcome = TerminationOutcome.failed(str(e))
        self._inbox.put(("kill_done", entry, outcome))

    def visible_entries(self):
        return filter_entries(self.snapshot.entries, self.category, self.search_text)

    def category_counts(self):
        return category_counts(self.snapshot.entries)

    def close(self):
        # in-flight scans and grace periods still run to completion
        self._executor.shutdown(wait=False)
        self._kill_executor.shutdown(wait=False)

class RefreshScheduler:
    """Posts a scan to the store now and every `interval` seconds until stopped."""

    def __init__(self, store, interval=SCAN_INTERVAL):
        self.store = store
        self.interval = interval
        self._stop_event = None
        self._lock = threading.Lock()

    @property
    def running(self):
        return self._stop_event is not None

    def start(self):
        with self._lock:
            if self._stop_event is not None:
                return False
            stop_event = threading.Event()
            self._stop_event = stop_event
        self.store.request_scan()
        threading.Thread(target=self._run, args=(stop_event,), daemon=True,
                         name="PortSentryRefresh").start()
        debug_log(f"SCHEDULER: started, every {self.interval}s")
        return True

    def stop(self):
        with self._lock:
            if self._stop_event is None:
                return False
            self._stop_event.set()
            self._stop_event = None
        debug_log("SCHEDULER: stopped")
        return True

    def _run(self, stop_event):
        while not stop_event.wait(self.interval):
            self.store.request_scan()

# --------------------------------------------------
# Text output
# --------------------------------------------------
def format_table(entries):
    lines = [f"{'PORT':>6}  {'CATEGORY':<9} {'PROCESS':<20} {'PID':>7}  {'USER':<12} ADDRESS"]
    for e in entries:
        lines.append(f"{e.port:>6}  {e.category.label:<9} {e.process_name[:20]:<20} "
                     f"{e.pid:>7}  {e.user[:12]:<12} {display_address(e.address)}")
    return lines

def format_histogram(counts, total):
    chips = [f"All {total}"] + [f"{category.label} {count}" for category, count in counts]
    return " | ".join(chips)

def render_report(store):
    snapshot = store.snapshot
    entries = store.visible_entries()
    lines = [format_histogram(store.category_counts(), len(snapshot.entries)), ""]
    if entries:
        lines.extend(format_table(entries))
    elif store.search_text or store.category is not None:
        lines.append("No ports match filter")
    else:
        lines.append("No listening ports")
    lines.append("")
    if snapshot.error:
        lines.append(f"Scan failed: {snapshot.error}")
    elif snapshot.scanned_at is not None:
        lines.append(f"Updated {snapshot.scanned_at.strftime('%H:%M:%S')}")
    return lines

# --------------------------------------------------
# CLI
# --------------------------------------------------
def check_python_version():
    if sys.version_info < (3, 7):
        print("Python 3.7 or newer is required.")
        sys.exit(1)

def check_lsof_exists():
    if find_lsof() is None:
        print("Error: 'lsof' command not found. Please install 'lsof' or set lsof_path in "
              f"{CONFIG_PATH}.")
        sys.exit(1)

def _get_app_version():
    try:
        v_file = os.path.join(os.path.dirname(__file__), "VERSION")
        with open(v_file) as f:
            return f.read().strip()
    except OSError:
        return "0.1.0"

def _category_arg(text):
    try:
        return parse_category(text)
    except ValueError:
        names = ", ".join(c.name.lower() for c in Category)
        raise argparse.ArgumentTypeError(f"unknown category {text!r} (choose from all, {names})")

def _port_arg(text):
    try:
        port = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a port number: {text!r}")
    if not 0 <= port <= 65535:
        raise argparse.ArgumentTypeError(f"port out of range: {port}")
    return port

def _default_category():
    try:
        return parse_category(CONFIG.get("default_category"))
    except ValueError as e:
        debug_log(f"CONFIG: {e}")
        return None

def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="portsentry",
        description="List TCP ports in LISTEN state and stop the processes holding them.")
    parser.add_argument("--version", action="version", version=f"portsentry {_get_app_version()}")
    parser.add_argument("-c", "--category", type=_category_arg,
                        help="Only show one category: webdev, backend, database, system, other or all")
    parser.add_argument("-s", "--search", help="Filter by process name, port or PID")
    parser.add_argument("--json", action="store_true", help="Print entries as JSON")
    parser.add_argument("-w", "--watch", action="store_true",
                        help=f"Rescan every {SCAN_INTERVAL:g}s until interrupted")
    target = parser.add_mutually_exclusive_group()
    target.add_argument("-k", "--kill", type=_port_arg, metavar="PORT",
                        help="Stop the process(es) listening on PORT")
    target.add_argument("--kill-pid", type=int, metavar="PID", help="Stop the process with this PID")
    parser.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")
    parser.set_defaults(category=_default_category(), search=CONFIG.get("default_search") or "")
    return parser.parse_args(argv)

def confirm(question, out=None):
    out = out or sys.stdout
    print(question, file=out)
    out.write("[y/N] ")
    out.flush()
    try:
        answer = input()
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")

def kill_targets(entries, port=None, pid=None):
    """Entries to stop, one per pid, ordered by port."""
    if port is not None:
        matching = [e for e in entries if e.port == port]
    else:
        matching = [e for e in entries if e.pid == pid]
    targets = []
    seen = set()
    for entry in sorted(matching, key=lambda e: e.port):
        if entry.pid in seen:
            continue
        seen.add(entry.pid)
        targets.append(entry)
    return targets

def run_kill(store, args):
    # with --json, stdout carries only the JSON document
    out = sys.stderr if args.json else sys.stdout
    store.request_scan()
    store.wait_idle()
    targets = kill_targets(store.snapshot.entries, port=args.kill, pid=args.kill_pid)
    if not targets:
        if args.kill is not None:
            print(f"No process is listening on port {args.kill}.", file=out)
        else:
            print(f"PID {args.kill_pid} has no listening TCP ports.", file=out)
        return 1

    exit_code = 0
    kills = []
    for entry in targets:
        if not args.yes and not confirm(kill_prompt(entry), out):
            print(f"Skipped {entry.process_name} (PID {entry.pid}).", file=out)
            continue
        store.request_kill(entry)
        store.wait_idle()
        result = store.kill_result
        print(describe_outcome(result.entry, result.outcome), file=out)
        kills.append(dict(result.entry.to_dict(),
                          outcome=result.outcome.kind.value,
                          reason=result.outcome.reason))
        if result.outcome.kind is OutcomeKind.FAILED:
            exit_code = 1

    if args.json:
        print(json.dumps({
            "kills": kills,
            "entries": [e.to_dict() for e in store.visible_entries()],
        }, indent=2))
    else:
        print()
        print("\n".join(render_report(store)))
    return exit_code

def _banner(store):
    result = store.kill_result
    if result is None or time.monotonic() - result.resolved_at >= KILL_RESULT_TTL:
        return None
    return describe_outcome(result.entry, result.outcome)

def _redraw(store):
    if sys.stdout.isatty():
        sys.stdout.write("\033[H\033[J")
    lines = render_report(store)
    if store.is_scanning:
        lines.append("Scanning...")
    banner = _banner(store)
    if banner:
        lines.append(banner)
    print("\n".join(lines), flush=True)

def run_watch(store, args):
    scheduler = RefreshScheduler(store)
    scheduler.start()
    banner_visible = False
    try:
        while True:
            changed = store.process_pending(timeout=0.5)
            banner_now = _banner(store) is not None
            if changed or banner_now != banner_visible:
                _redraw(store)
            banner_visible = banner_now
    except KeyboardInterrupt:
        pass
    finally:
        scheduler.stop()
    return 0

def main(store, args):
    store.set_filter(args.category, args.search)
    if args.kill is not None or args.kill_pid is not None:
        exit_code = run_kill(store, args)
        if not args.watch:
            return exit_code
    if args.watch:
        return run_watch(store, args)

    store.request_scan()
    store.wait_idle()
    if args.json:
        print(json.dumps([e.to_dict() for e in store.visible_entries()], indent=2))
    else:
        print("\n".join(render_report(store)))
    return 0

def cli_entry():
    """terminal command 'portsentry' entry point"""
    check_python_version()
    init_config()
    args = parse_args()
    check_lsof_exists()

    store = PortStore()
    try:
        sys.exit(main(store, args))
    finally:
        store.close()


if __name__ == "__main__":
    cli_entry()
