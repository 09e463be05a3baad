import pytest

from server_optimizer.errors import ExternalToolError
from server_optimizer.tuning import apply_performance_tuning, merge_limits, merge_sysctl

LIMITS = "/etc/security/limits.conf"
SYSCTL = "/etc/sysctl.conf"

STOCK_LIMITS = (
    "# /etc/security/limits.conf\n"
    "#\n"
    "#<domain>      <type>  <item>         <value>\n"
    "@faculty        soft    nproc           20\n"
    "# End of file\n"
)

STOCK_SYSCTL = (
    "# sysctl settings are defined through files in\n"
    "# /usr/lib/sysctl.d/, /run/sysctl.d/, and /etc/sysctl.d/.\n"
)


def test_fresh_files_get_all_entries(gateway, settings, out):
    apply_performance_tuning(gateway, settings, out)

    assert gateway.files[LIMITS] == "* soft nofile 65535\n* hard nofile 65535\n"
    assert gateway.files[SYSCTL] == (
        "net.core.somaxconn = 1024\n"
        "net.ipv4.tcp_syncookies = 1\n"
        "vm.swappiness = 10\n"
    )
    assert ("reload_sysctl", SYSCTL) in gateway.calls


@pytest.mark.parametrize("runs", [2, 3, 10])
def test_repeated_runs_match_single_run(gateway, settings, out, runs):
    gateway.files = {LIMITS: STOCK_LIMITS, SYSCTL: STOCK_SYSCTL}
    apply_performance_tuning(gateway, settings, out)
    once = dict(gateway.files)

    for _ in range(runs - 1):
        apply_performance_tuning(gateway, settings, out)

    assert gateway.files == once
    assert once[LIMITS].count("nofile 65535") == 2
    assert once[SYSCTL].count("vm.swappiness") == 1


def test_second_run_writes_nothing(gateway, settings, out):
    apply_performance_tuning(gateway, settings, out)
    writes = [c for c in gateway.calls if c[0] == "write_config"]

    changed = apply_performance_tuning(gateway, settings, out)

    assert changed == []
    assert [c for c in gateway.calls if c[0] == "write_config"] == writes


def test_existing_content_is_preserved():
    merged = merge_limits(STOCK_LIMITS, [["*", "soft", "nofile", "65535"]])

    assert merged == STOCK_LIMITS + "* soft nofile 65535\n"


def test_conflicting_value_is_rewritten_in_place():
    content = "# tuning\nvm.swappiness=60\nkernel.pid_max = 4194304\n"

    merged = merge_sysctl(content, {"vm.swappiness": "10"})

    assert merged == "# tuning\nvm.swappiness = 10\nkernel.pid_max = 4194304\n"


def test_equivalent_spacing_is_left_alone():
    content = "vm.swappiness=10\n*\tsoft\tnofile\t65535\n"

    assert merge_sysctl(content, {"vm.swappiness": 10}) == content
    assert merge_limits(content, [["*", "soft", "nofile", 65535]]) == content


def test_duplicates_from_old_appends_are_collapsed():
    content = (
        "* soft nofile 65535\n* hard nofile 65535\n"
        "* soft nofile 65535\n* hard nofile 65535\n"
    )

    merged = merge_limits(content, [["*", "soft", "nofile", "65535"], ["*", "hard", "nofile", "65535"]])

    assert merged == "* soft nofile 65535\n* hard nofile 65535\n"


def test_commented_entries_do_not_count():
    merged = merge_sysctl("# vm.swappiness = 10\n", {"vm.swappiness": "10"})

    assert merged == "# vm.swappiness = 10\nvm.swappiness = 10\n"


def test_missing_trailing_newline_is_fixed():
    assert merge_sysctl("kernel.pid_max = 1", {"vm.swappiness": "10"}) == (
        "kernel.pid_max = 1\nvm.swappiness = 10\n"
    )


def test_sysctl_reload_failure_raises(gateway, settings, out):
    gateway.fail("reload_sysctl", returncode=255)

    with pytest.raises(ExternalToolError) as excinfo:
        apply_performance_tuning(gateway, settings, out)

    assert excinfo.value.failures[0].returncode == 255
    # files are still written before the reload
    assert LIMITS in gateway.files
