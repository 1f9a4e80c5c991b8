from decimal import Decimal


def num(val):
    """Decimal -> int si es entero, si no float. None queda None."""
    if val is None:
        return None
    if isinstance(val, Decimal):
        return int(val) if val == val.to_integral_value() else float(val)
    return val


def stock_to_dict(stock) -> dict:
    return {
        "id": stock.id,
        "date": stock.date.isoformat(),
        "location": stock.location,
        "productType": stock.product_type,
        "productCategory": stock.product_category,
        "productName": stock.product_category,  # alias que usa el frontend
        "productSubCategory": stock.product_sub_category,
        "totalStock": num(stock.total_stock),
        "soldQty": num(stock.sold_qty),
        "returnQty": num(stock.return_qty),
        "remainingQty": num(stock.remaining_qty),
        "unit": stock.unit,
        "notes": stock.notes,
        "weatherCondition": stock.weather_condition,
        "weatherHighTemp": num(stock.weather_high_temp),
        "weatherLowTemp": num(stock.weather_low_temp),
        "weatherTemperature": num(stock.weather_temperature),
        "weatherDescription": stock.weather_description,
        "createdAt": stock.created_at.isoformat() if stock.created_at else None,
        "updatedAt": stock.updated_at.isoformat() if stock.updated_at else None,
    }
