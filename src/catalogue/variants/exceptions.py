"""Exceptions raised while persisting generated variant combinations."""


class DuplicateCombinationKey(Exception):
    """A combination with the same canonical key already exists for the product.

    Raised by ``ProductVariants`` when a combination is added twice. Re-running
    variant generation catches it and skips the combination.
    """

    def __init__(self, product_id, combination_key):
        self.product_id = product_id
        self.combination_key = combination_key
        super().__init__(f"Combination {combination_key} already exists for product {product_id}")
