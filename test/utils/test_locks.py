import os
import threading
import time

from releaser.utils.locks import DeploymentLock


def test_hold_creates_lock_file(tmp_path):
    lock = DeploymentLock(str(tmp_path / "locks"))

    with lock.hold("my-node-app", "my-node-env"):
        assert os.path.exists(tmp_path / "locks" / "my-node-app--my-node-env.lock")


def test_lock_file_name_is_sanitized(tmp_path):
    lock = DeploymentLock(str(tmp_path))

    with lock.hold("my app", "env/prod"):
        pass

    assert os.listdir(tmp_path) == ["my_app--env_prod.lock"]


def test_same_target_is_serialized(tmp_path):
    lock = DeploymentLock(str(tmp_path))
    events = []

    def deploy(name):
        with lock.hold("app", "env"):
            events.append(f"{name}-start")
            time.sleep(0.05)
            events.append(f"{name}-end")

    threads = [threading.Thread(target=deploy, args=(n,)) for n in ("first", "second")]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(events) == 4
    # whichever run went first finished before the other started
    assert events[0].split("-")[0] == events[1].split("-")[0]
    assert events[2].split("-")[0] == events[3].split("-")[0]


def test_different_targets_do_not_block_each_other():
    lock = DeploymentLock()
    inner_held = threading.Event()

    def other_target():
        with lock.hold("app", "staging"):
            inner_held.set()

    with lock.hold("app", "production"):
        t = threading.Thread(target=other_target)
        t.start()
        assert inner_held.wait(timeout=2)
        t.join()


def test_lock_is_released_after_error():
    lock = DeploymentLock()

    try:
        with lock.hold("app", "env"):
            raise RuntimeError("deploy failed")
    except RuntimeError:
        pass

    acquired = threading.Event()

    def again():
        with lock.hold("app", "env"):
            acquired.set()

    t = threading.Thread(target=again)
    t.start()
    assert acquired.wait(timeout=2)
    t.join()
