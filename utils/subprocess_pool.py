import logging
import subprocess

log = logging.getLogger()


class Popen2:
    """Runs commands in the background, at most max_num at a time."""

    def __init__(self, max_num):
        self.max_num = max_num
        self.ps = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.wait()
        return False

    def reap(self):
        running = []
        for p, cmd in self.ps:
            if p.poll() is None:
                running.append((p, cmd))
            else:
                self.done(p, cmd)
        self.ps = running

    def done(self, p, cmd):
        if p.returncode:
            log.warning('Failed ({}): {}'.format(p.returncode, cmd))
        else:
            log.info('Done: {}'.format(cmd))

    def run(self, cmd, stderr=subprocess.DEVNULL, **kargs):
        self.reap()
        while len(self.ps) >= self.max_num:
            p, c = self.ps.pop(0)
            p.wait()
            self.done(p, c)
        log.debug(cmd)
        p = subprocess.Popen(cmd, stderr=stderr, **kargs)
        self.ps.append((p, cmd))
        return p

    def wait(self):
        for p, cmd in self.ps:
            p.wait()
            self.done(p, cmd)
        self.ps = []
