"""
DlmmService Unit Tests
======================
Tests for the mock DLMM position service and liquidity input validation.
"""

import pytest


@pytest.fixture
def dlmm():
    from src.liquidity.dlmm_service import DlmmService

    return DlmmService()


@pytest.fixture
def signer():
    from solders.keypair import Keypair

    return Keypair()


class TestPositions:

    @pytest.mark.asyncio
    async def test_mock_position(self, dlmm, signer, sample_position):
        positions = await dlmm.get_positions(str(signer.pubkey()))

        assert positions == [sample_position]

    @pytest.mark.asyncio
    async def test_rebalance_suggestion(self, dlmm, sample_position):
        text = await dlmm.suggest_rebalance(sample_position)

        assert text == "Suggestion: Shift 20% liquidity to lower bins for better yield."


class TestAddLiquidity:

    @pytest.mark.asyncio
    async def test_tx_id_format(self, dlmm, signer):
        tx = await dlmm.add_liquidity("mockPoolAddress", "100", "200", "1.5", "2", signer=signer)

        assert tx.startswith("mockTx_100_200_1.5_2_")
        assert tx.rsplit("_", 1)[1].isdigit()

    @pytest.mark.asyncio
    async def test_default_amount_y(self, dlmm, signer):
        tx = await dlmm.add_liquidity("mockPoolAddress", 1, 2, "3", signer=signer)

        assert tx.startswith("mockTx_1_2_3_0_")

    @pytest.mark.asyncio
    async def test_non_numeric_bin(self, dlmm, signer):
        from src.shared.system.errors import LiquidityParamsError

        with pytest.raises(LiquidityParamsError):
            await dlmm.add_liquidity("pool", "low", "200", "1", signer=signer)

    @pytest.mark.asyncio
    async def test_inverted_range(self, dlmm, signer):
        from src.shared.system.errors import LiquidityParamsError

        with pytest.raises(LiquidityParamsError):
            await dlmm.add_liquidity("pool", 300, 200, "1", signer=signer)

    @pytest.mark.asyncio
    async def test_empty_amount(self, dlmm, signer):
        with pytest.raises(ValueError):
            await dlmm.add_liquidity("pool", 100, 200, "", signer=signer)

    @pytest.mark.asyncio
    async def test_requires_signer(self, dlmm):
        from src.shared.system.errors import LiquidityParamsError

        with pytest.raises(LiquidityParamsError):
            await dlmm.add_liquidity("pool", 100, 200, "1")


class TestRemoveLiquidity:

    @pytest.mark.asyncio
    async def test_tx_id_format(self, dlmm, signer):
        position = str(signer.pubkey())

        tx = await dlmm.remove_liquidity(position, "5", signer=signer)

        assert tx.startswith(f"mockRemoveTx_{position}_5_")

    @pytest.mark.asyncio
    async def test_invalid_position_key(self, dlmm, signer):
        from src.shared.system.errors import LiquidityParamsError

        with pytest.raises(LiquidityParamsError):
            await dlmm.remove_liquidity("not-a-pubkey", "5", signer=signer)

    @pytest.mark.asyncio
    async def test_invalid_amount(self, dlmm, signer):
        from src.shared.system.errors import LiquidityParamsError

        with pytest.raises(LiquidityParamsError):
            await dlmm.remove_liquidity(str(signer.pubkey()), "abc", signer=signer)
