"""City catalog: canonical city names mapped to IATA airport codes."""

# Canonical city -> IATA code. Read-only at runtime.
CITY_CATALOG: dict[str, str] = {
    "Chennai": "MAA",
    "Delhi": "DEL",
    "Mumbai": "BOM",
    "Bengaluru": "BLR",
    "Kolkata": "CCU",
    "Hyderabad": "HYD",
    "Ahmedabad": "AMD",
    "Pune": "PNQ",
    "Goa": "GOI",
    "Jaipur": "JAI",
    "Lucknow": "LKO",
    "Kochi": "COK",
    "Thiruvananthapuram": "TRV",
    "Coimbatore": "CJB",
    "Madurai": "IXM",
    "Tiruchirappalli": "TRZ",
    "Mangaluru": "IXE",
    "Kozhikode": "CCJ",
    "Kannur": "CNN",
    "Visakhapatnam": "VTZ",
    "Vijayawada": "VGA",
    "Tirupati": "TIR",
    "Rajahmundry": "RJA",
    "Kadapa": "CDP",
    "Bhubaneswar": "BBI",
    "Jharsuguda": "JRG",
    "Patna": "PAT",
    "Gaya": "GAY",
    "Darbhanga": "DBR",
    "Ranchi": "IXR",
    "Deoghar": "DGH",
    "Guwahati": "GAU",
    "Bagdogra": "IXB",
    "Imphal": "IMF",
    "Agartala": "IXA",
    "Dibrugarh": "DIB",
    "Silchar": "IXS",
    "Shillong": "SHL",
    "Aizawl": "AJL",
    "Dimapur": "DMU",
    "Srinagar": "SXR",
    "Jammu": "IXJ",
    "Leh": "IXL",
    "Amritsar": "ATQ",
    "Chandigarh": "IXC",
    "Dehradun": "DED",
    "Dharamshala": "DHM",
    "Kullu": "KUU",
    "Shimla": "SLV",
    "Varanasi": "VNS",
    "Prayagraj": "IXD",
    "Gorakhpur": "GOP",
    "Kanpur": "KNU",
    "Agra": "AGR",
    "Gwalior": "GWL",
    "Indore": "IDR",
    "Bhopal": "BHO",
    "Jabalpur": "JLR",
    "Raipur": "RPR",
    "Nagpur": "NAG",
    "Aurangabad": "IXU",
    "Nashik": "ISK",
    "Kolhapur": "KLH",
    "Surat": "STV",
    "Vadodara": "BDQ",
    "Rajkot": "RAJ",
    "Bhavnagar": "BHU",
    "Jamnagar": "JGA",
    "Udaipur": "UDR",
    "Jodhpur": "JDH",
    "Bikaner": "BKB",
    "Hubli": "HBX",
    "Belagavi": "IXG",
    "Mysuru": "MYQ",
    "Port Blair": "IXZ",
    "Thoothukudi": "TCR",
    "Salem": "SXV",
}

# Common alternate names -> canonical city
CITY_ALIASES: dict[str, str] = {
    "bangalore": "Bengaluru",
    "bombay": "Mumbai",
    "calcutta": "Kolkata",
    "madras": "Chennai",
    "new delhi": "Delhi",
    "gurgaon": "Delhi",
    "cochin": "Kochi",
    "trivandrum": "Thiruvananthapuram",
    "trichy": "Tiruchirappalli",
    "mangalore": "Mangaluru",
    "mysore": "Mysuru",
    "calicut": "Kozhikode",
    "vizag": "Visakhapatnam",
    "belgaum": "Belagavi",
    "allahabad": "Prayagraj",
    "tuticorin": "Thoothukudi",
    "baroda": "Vadodara",
}
