"""
ChangeDetector Unit Tests
=========================
Tests for balance rounding, structural position comparison and new
transaction detection.
"""


def _snap(balance=0.0, positions=(), signatures=()):
    from src.shared.models.wallet import StateSnapshot

    return StateSnapshot(owner_id="alice", balance=balance, positions=positions, signatures=signatures)


def _pos(**overrides):
    from src.shared.models.wallet import Position

    fields = dict(pool="mockPoolAddress", lower_bin=100, upper_bin=200, liquidity=1000.0, fees_earned=10.0)
    fields.update(overrides)
    return Position(**fields)


class TestBalanceComparison:
    """Balances compare after rounding to 4 decimals."""

    def test_equal_snapshots_no_changes(self, sample_position):
        from src.shared.state.change_detector import diff

        old = _snap(1.5, (sample_position,), ("a", "b"))
        new = _snap(1.5, (sample_position,), ("a", "b"))

        changes = diff(old, new)

        assert not changes.has_changes
        assert changes.new_signatures == frozenset()
        assert changes.changed_dimensions() == []

    def test_change_visible_at_fourth_decimal(self):
        """1.00004 rounds to 1.0, 1.00009 rounds to 1.0001."""
        from src.shared.state.change_detector import diff

        changes = diff(_snap(1.00004), _snap(1.00009))

        assert changes.balance_changed
        assert changes.old_balance == 1.00004
        assert changes.new_balance == 1.00009

    def test_sub_threshold_drift_absorbed(self):
        from src.shared.state.change_detector import diff

        assert not diff(_snap(1.000041), _snap(1.000044)).balance_changed

    def test_zero_baseline_reports_funded_wallet(self):
        """First observation of a funded wallet against the empty baseline."""
        from src.shared.models.wallet import StateSnapshot
        from src.shared.state.change_detector import diff

        changes = diff(StateSnapshot.empty("alice"), _snap(2.0))

        assert changes.balance_changed
        assert "0.0000 -> 2.0000" in changes.summary()


class TestPositionComparison:
    """Positions compare on (pool, lower_bin, upper_bin, liquidity) in order."""

    def test_fees_only_difference_ignored(self):
        from src.shared.state.change_detector import diff

        changes = diff(_snap(positions=(_pos(fees_earned=10.0),)), _snap(positions=(_pos(fees_earned=12.5),)))

        assert not changes.positions_changed
        assert not changes.has_changes

    def test_lower_bin_difference_detected(self):
        from src.shared.state.change_detector import diff

        changes = diff(_snap(positions=(_pos(),)), _snap(positions=(_pos(lower_bin=90),)))

        assert changes.positions_changed

    def test_liquidity_difference_detected(self):
        from src.shared.state.change_detector import diff

        changes = diff(_snap(positions=(_pos(),)), _snap(positions=(_pos(liquidity=500.0),)))

        assert changes.positions_changed
        assert changes.changed_dimensions() == ["positions"]

    def test_reordering_counts_as_change(self):
        from src.shared.state.change_detector import diff

        a, b = _pos(pool="poolA"), _pos(pool="poolB")

        assert diff(_snap(positions=(a, b)), _snap(positions=(b, a))).positions_changed

    def test_new_position_detected(self):
        from src.shared.state.change_detector import diff

        assert diff(_snap(), _snap(positions=(_pos(),))).positions_changed


class TestSignatureComparison:
    """New signatures are the set difference new - old."""

    def test_only_unseen_signatures_reported(self):
        from src.shared.state.change_detector import diff

        changes = diff(_snap(signatures=("a", "b", "c")), _snap(signatures=("d", "a", "b")))

        assert changes.new_signatures == frozenset({"d"})
        assert "New transactions: 1" in changes.summary()

    def test_dropped_signatures_not_reported(self):
        """Signatures falling out of the recent window are not a change."""
        from src.shared.state.change_detector import diff

        changes = diff(_snap(signatures=("a", "b", "c")), _snap(signatures=("a", "b")))

        assert not changes.has_changes


class TestSummary:
    """Summary names every changed dimension."""

    def test_all_dimensions(self):
        from src.shared.state.change_detector import diff

        changes = diff(_snap(1.0), _snap(1.25, (_pos(),), ("sig1",)))
        summary = changes.summary()

        assert changes.changed_dimensions() == ["balance", "positions", "transactions"]
        assert "Balance changed: 1.0000 -> 1.2500 SOL" in summary
        assert "Positions updated." in summary
        assert "New transactions: 1" in summary
