import dataclasses
import logging
import pathlib
import sys

from dotenv import load_dotenv

import lenientjson


@dataclasses.dataclass
class Product:
    sku: lenientjson.FlexibleText
    title: lenientjson.FlexibleText
    price: lenientjson.FlexibleNumber
    tags: lenientjson.FlexibleList[str]
    discount: lenientjson.TolerantOptional[lenientjson.FlexibleNumber]


@lenientjson.diagnostics_hook
def report_fallback(event: lenientjson.Fallback) -> None:
    print(f"  ! {event.wrapper} at {event.path}: {event.message}")


def main(path: pathlib.Path) -> None:
    products = lenientjson.loads(list[Product], path.read_bytes())
    for product in products:
        discount = product.discount.value
        print(
            f"{product.sku.as_string:>6}  {product.title.as_string:<12}"
            f"  {product.price.as_double:8.2f}"
            f"{'' if product.price.is_numeric else ' (unparsable)'}"
            f"  tags={product.tags.as_array}"
            f"  discount={discount.as_double if discount is not None else '-'}"
        )
    print(lenientjson.dumps(products).decode())


if __name__ == "__main__":
    load_dotenv()
    logging.basicConfig(level=logging.DEBUG)
    lenientjson.init()
    main(
        pathlib.Path(sys.argv[1])
        if len(sys.argv) > 1
        else pathlib.Path(__file__).parent / "products.json"
    )
