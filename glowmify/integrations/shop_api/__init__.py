from glowmify.integrations.shop_api.client import ShopApiClient, ShopApiClientProtocol

__all__ = ["ShopApiClient", "ShopApiClientProtocol"]
