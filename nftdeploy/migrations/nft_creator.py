from nftdeploy.deployer import Deployer
from nftdeploy.params import GenNFTParams

CONTRACT_NAME = "GenNFT"

GEN_NFT_PARAMS = GenNFTParams(
    max_supply=20,
    max_mint_amount=1,
    reserve_limit=50,
    sale_start=1648739423,
    sale_end=1648739423,
    not_revealed_uri="https://gateway.pinata.cloud/ipfs/QmTNpSVs3MhWKYPUf47UsCK5yc96JwExZkVf3KyuRtQAKz",
    base_uri="https://gateway.pinata.cloud/ipfs/QmSVyoTFpi9jepZke4pMtuCm5dWY71fJka5qPJ2qkqwgvW/",
    base_extension=".json",
    paused=False,
    revealed=True,
)


def migrate(deployer: Deployer) -> None:
    deployer.deploy(CONTRACT_NAME, *GEN_NFT_PARAMS.constructor_args())
